"""Project-wide constants (fragment sizes, timeouts, file naming)."""

FRAGMENT_SIZE_BYTES: int = 400 * 1024 * 1024  # 400 MiB default fragment size
READ_BLOCK_SIZE: int = 1024 * 1024

DEFAULT_DIGEST_ALGORITHM: str = "sha256"

UPLOAD_TIMEOUT_SECONDS: float = 30 * 60.0
DOWNLOAD_TIMEOUT_SECONDS: float = 20 * 60.0

DEFAULT_ENDPOINT: str = "https://indexer.0g.ai"
DEFAULT_RPC_URL: str = "https://rpc.0g.ai"
DEFAULT_LOCAL_STORE_PATH: str = "~/.splitup/store"

FRAGMENT_FILE_TEMPLATE: str = "fragment_{index:03d}.dat"
MANIFEST_SUFFIX: str = ".manifest.json"
RESTORED_SUFFIX: str = ".restored"
WORK_DIR_PREFIX: str = "splitup-"
