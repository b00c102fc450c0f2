"""
cexprime Protocol Layer
=======================

Frame vocabulary and JSON codec shared by the WebSocket engine. Nothing in
here knows about sockets, threads or futures.

Frames
------

Outbound request      {"e": <action>, "data": <params>, "oid": <id>}
Outbound auth         {"e": "auth", "auth": {key, signature, timestamp}, "oid": "auth"}
Outbound heartbeat    {"e": "ping"}

Inbound push          {"e": <event>, ...}
Inbound reply         {"oid": <id>, "ok": "ok" | <other>, "data": <payload> | {"error": ...}}
Inbound heartbeat     {"e": "pong"}
"""

from . import fields
from . import wire
