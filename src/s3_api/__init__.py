"""HTTP JSON facade for provisioning S3 buckets and static websites."""

__version__ = "1.0.0"
