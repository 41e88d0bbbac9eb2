"""
Storage Service Launcher

Starts the Hubfly storage API from the storage/ package.

This service provides:
- Loopback volume create/delete backed by fallocate, mkfs.ext4 and mount
- Docker named volume registration
- Volume capacity stats
- Scoped file-browser login URLs

Usage:
    python scripts/run_storage_service.py --host 0.0.0.0 --port 8203

Environment Variables:
    HUBFLY_STORAGE_PORT: API port (default: 8203)
    HUBFLY_STORAGE_BIND_HOST: Bind address (default: 0.0.0.0)
    HUBFLY_STORAGE_BASE_DIR: Volume directory (default: ./docker/volumes)
    HUBFLY_STORAGE_LOG_LEVEL / HUBFLY_STORAGE_LOG_FILE: logging
"""
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from storage.__main__ import main


if __name__ == "__main__":
    main()
