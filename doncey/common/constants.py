"""Shared constants for the client."""

# Network
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 5000
CONNECT_TIMEOUT = 10.0  # seconds

# Protocol limits
MAX_LINE_LENGTH = 255  # bytes kept per received line, excess is dropped
MAX_MAP_WIDTH = 64
MAX_MAP_HEIGHT = 64
MAX_PLAYERS = 32
MAX_NAME_LENGTH = 31

# Client
DEFAULT_PLAYER_NAME = "Jugador1"
FRAME_INTERVAL = 1 / 60  # seconds per frame of the live loop
STATE_QUEUE_SIZE = 256  # parsed server messages buffered for the frame loop
# Seconds a direction stays held after a key press. The first press has to
# bridge the terminal's autorepeat delay, later repeats arrive much faster.
INITIAL_HOLD_WINDOW = 0.5
HOLD_WINDOW = 0.15
KEEPALIVE_INTERVAL = 10.0  # send PING after this long without sending anything
