# Line length ceiling of the protocol, terminator not counted.
MAX_LINE_LENGTH = 1024
# A response line including its LF must stay below this many bytes.
DEFAULT_READ_LIMIT = 2048

DEFAULT_SERVER_PATH = "../sm/gpgsm"
DEFAULT_SERVER_ARGS = ("--server",)
