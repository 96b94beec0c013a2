"""AxoChat protocol constants (envelope keys, packet kinds and field names).

AxoChat Protocol
================

Every frame is a single JSON object carried as a WebSocket text frame:

    {"m": "<Kind>", "c": {<kind-specific fields, snake_case>}}

Compatibility:
    - Servers may add new packet kinds at any time
    - Clients MUST tolerate unknown kinds and simply not dispatch them as typed events
"""

# ============================================================================
# Envelope Keys
# ============================================================================

K_KIND = "m"  # Packet kind (str) - REQUIRED
K_CONTENT = "c"  # Packet payload (object) - OPTIONAL, defaults to {}

# Upper bound on a single inbound frame, in bytes
MAX_FRAME_SIZE = 1024 * 512

# ============================================================================
# Packet Kinds - Client -> Server
# ============================================================================

P_LOGIN_JWT = "LoginJWT"  # Payload: token, allow_messages
# Response: Success(Login) or Error

P_MESSAGE = "Message"  # Payload: content
# Broadcast to every logged in client

P_PRIVATE_MESSAGE = "PrivateMessage"  # Payload: message, receiver
# Delivered only if the receiver logged in with allow_messages

P_REQUEST_JWT = "RequestJWT"  # No payload
# Response: NewJWT (requires an authenticated connection)

P_REQUEST_USER_COUNT = "RequestUserCount"  # No payload
# Response: UserCount

P_BAN_USER = "BanUser"  # Payload: user (dashed UUID)
# Response: Success(Ban) or Error (moderators only)

P_UNBAN_USER = "UnbanUser"  # Payload: user (dashed UUID)
# Response: Success(Unban) or Error (moderators only)

# ============================================================================
# Packet Kinds - Server -> Client
# ============================================================================

P_ERROR = "Error"  # Payload: message (one of the error reasons)
# P_MESSAGE                Payload: author_info, content
# P_PRIVATE_MESSAGE        Payload: author_info, content
P_NEW_JWT = "NewJWT"  # Payload: token
P_SUCCESS = "Success"  # Payload: reason (Login | Ban | Unban)
P_USER_COUNT = "UserCount"  # Payload: connections, logged_in

# ============================================================================
# Wire Field Names
# ============================================================================

F_TOKEN = "token"
F_ALLOW_MESSAGES = "allow_messages"
F_CONTENT = "content"
F_MESSAGE = "message"
F_RECEIVER = "receiver"
F_USER = "user"
F_AUTHOR_INFO = "author_info"
F_NAME = "name"
F_UUID = "uuid"
F_REASON = "reason"
F_CONNECTIONS = "connections"
F_LOGGED_IN = "logged_in"

# ============================================================================
# WebSocket Close Codes
# ============================================================================

CLOSE_NORMAL = 1000
CLOSE_ABNORMAL = 1006  # Reported locally when the connection could not be made or dropped
