"""
Hubfly Storage Service

Provisions loopback-mounted, file-backed volumes and registers them as
Docker named volumes.
Responsibilities:
- Volume create/delete/stats over HTTP
- Volume registry (declared size, labels)
- Scoped file-browser login URLs for a volume
"""
