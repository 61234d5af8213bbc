# fileshare_common/protocol.py

HOST = '0.0.0.0'    # Listen on all interfaces
CLIENT_HOST = '127.0.0.1'
PORT = 8080
LISTEN_BACKLOG = 8
CHUNK_SIZE = 64 * 1024  # 64KB per bulk chunk

# Obfuscation only: a fixed single-byte XOR, NOT encryption
XOR_KEY = 0x5A

FRAME_HEADER_SIZE = 4   # u32 big-endian
BULK_HEADER_SIZE = 8    # u64 big-endian
MAX_FRAME_SIZE = 16 * 1024 * 1024          # 16MB
MAX_UPLOAD_SIZE = 4 * 1024 * 1024 * 1024   # 4GB

# Filesystem layout
SHARED_ROOT = 'server_files'
UPLOADS_DIR = 'uploads'
USERS_FILE = 'users.txt'
DOWNLOADS_DIR = 'client_downloads'

# Commands
CMD_AUTH = "AUTH"
CMD_LIST_FILES = "LIST"
CMD_GET_FILE = "GET"
CMD_PUT_FILE = "PUT"
CMD_QUIT = "QUIT"

# Server Responses
RESP_AUTH_OK = "AUTH_OK"
RESP_AUTH_FAIL = "AUTH_FAIL"
RESP_OK = "OK"
RESP_ERROR = "ERR"  # Followed by a space and a reason
RESP_BYE = "BYE"

ERR_BAD_NAME = "BadName"
ERR_NOT_FOUND = "NotFound"
ERR_UNKNOWN_CMD = "UnknownCmd"

# LIST reports an unreadable shared root inside the data frame
LIST_ERROR_PREFIX = "ERR:"
