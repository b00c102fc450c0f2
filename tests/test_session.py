import re
import threading
import time

import cexprime
from cexprime import session


def test_correlation_id_format():
    oid = session.correlation_id('get_balance')
    assert re.match(r'^\d{14,}_get_balance$', oid)


def test_correlation_id_same_millisecond(monkeypatch):
    """ Two ids minted for the same action within the same millisecond
        must still be distinct; the sequence counter disambiguates.
    """

    monkeypatch.setattr(session.time, 'time', lambda: 1700000000.123)

    first = session.correlation_id('place_order')
    second = session.correlation_id('place_order')

    assert first != second
    assert first.startswith('1700000000123')
    assert second.startswith('1700000000123')


def test_correlation_id_threads():
    ids = list()
    lock = threading.Lock()

    def mint():
        minted = [session.correlation_id('x') for count in range(200)]
        with lock:
            ids.extend(minted)

    threads = [threading.Thread(target=mint) for count in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(ids) == 800
    assert len(set(ids)) == 800


def test_settle_once():
    pending = session.PendingRequest('a')

    assert pending.resolve(1) == True
    assert pending.reject(RuntimeError('too late')) == False
    assert pending.resolve(2) == False

    assert pending.future.result(timeout=0) == 1
    assert pending.settled


def test_settle_cancelled_future():
    pending = session.PendingRequest('a')
    pending.future.cancel()

    # The entry is still considered settled, nothing raises.
    assert pending.resolve(1) == True
    assert pending.future.cancelled()


def test_settle_helper():
    future = session.rejected(ValueError('nope'))
    assert isinstance(future.exception(timeout=0), ValueError)
    assert session.settle(future, 1) == False


def test_table_register_and_pop():
    table = session.CorrelationTable(timeout=5)
    pending = table.register('a')

    assert 'a' in table
    assert len(table) == 1
    assert table.ids() == ['a']

    assert table.pop('a') is pending
    assert table.pop('a') is None
    assert len(table) == 0

    pending.resolve(None)
    assert pending.timer.finished.is_set()


def test_table_duplicate():
    table = session.CorrelationTable(timeout=5)
    table.register('a')

    try:
        table.register('a')
    except KeyError:
        pass
    else:
        raise AssertionError('expected a KeyError for a duplicate id')

    table.reject_all()


def test_table_timeout():
    table = session.CorrelationTable(timeout=0.05)
    pending = table.register('a')

    error = pending.future.exception(timeout=1)
    assert isinstance(error, cexprime.RequestTimeout)
    assert error.oid == 'a'
    assert 'a' not in table


def test_table_reject_all():
    table = session.CorrelationTable(timeout=5)
    entries = [table.register(str(number)) for number in range(3)]

    assert table.reject_all('socket hung up') == 3
    assert len(table) == 0

    for pending in entries:
        error = pending.future.exception(timeout=0)
        assert isinstance(error, cexprime.Disconnected)
        assert str(error) == 'socket hung up'
        assert error.oid == pending.oid
        assert pending.timer.finished.is_set()

    assert table.reject_all() == 0


def test_reject_all_default_reason():
    table = session.CorrelationTable(timeout=5)
    pending = table.register('a')
    table.reject_all()

    assert str(pending.future.exception(timeout=0)) == 'connection closed'


def test_race_settles_once():
    """ Hammer a single entry from several threads; exactly one settles it.
    """

    for attempt in range(50):
        table = session.CorrelationTable(timeout=0.001)
        pending = table.register('a')
        winners = list()
        barrier = threading.Barrier(3)

        def resolve():
            barrier.wait()
            removed = table.pop('a')
            if removed is not None and removed.resolve('reply'):
                winners.append('reply')

        def disconnect():
            barrier.wait()
            for removed in table.drain():
                if removed.reject(cexprime.Disconnected()):
                    winners.append('disconnect')

        threads = [threading.Thread(target=resolve), threading.Thread(target=disconnect)]
        for thread in threads:
            thread.start()
        barrier.wait()
        for thread in threads:
            thread.join()

        time.sleep(0.005)

        assert pending.settled
        assert len(winners) <= 1
        assert pending.future.done()


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
