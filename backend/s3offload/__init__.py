"""
S3 offload: object-storage adapter for a content-management host.
"""
__version__ = "0.1.0"
