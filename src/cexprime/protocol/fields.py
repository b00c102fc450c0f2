"""Wire vocabulary.

Keep these in one place to avoid stringly-typed frame handling.
"""

# Frame keys
EVENT = "e"
DATA = "data"
OID = "oid"
STATUS = "ok"
ERROR = "error"
AUTH_BLOCK = "auth"

# Status sentinel for a successful reply
OK = "ok"

# Reserved event names
AUTH = "auth"
PING = "ping"
PONG = "pong"
