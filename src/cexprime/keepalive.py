import logging
import threading
import time
import weakref

logger = logging.getLogger(__name__)


class Heartbeat:
    """ Background thread that invokes a ping method every *period* seconds.
        Only a weak reference to the method is held; if the owning client
        goes away, the heartbeat quietly stops. Any exception raised by the
        ping (typically because the connection just closed) also stops the
        heartbeat, it is never retried.
    """

    def __init__(self, method, period):

        period = float(period)
        if period <= 0:
            raise ValueError('heartbeat period must be positive')

        self.period = period
        self.reference = weakref.WeakMethod(method)
        self.shutdown = False

        self.alarm = threading.Event()
        self.thread = threading.Thread(target=self.run)
        self.thread.daemon = True
        self.thread.start()


    def run(self):

        next = time.time() + self.period

        while True:
            delay = next - time.time()
            if delay > 0:
                self.alarm.wait(delay)

            if self.shutdown == True:
                break

            # Honor the requested cadence regardless of how long the ping
            # itself took.

            next += self.period

            method = self.reference()

            if method is None:
                # The owner is gone. No further calls are possible.
                break

            try:
                method()
            except Exception as e:
                logger.info('heartbeat stopped: %s', e)
                break

            del method


    def stop(self):
        self.shutdown = True
        self.alarm.set()


# end of class Heartbeat


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
