# typedump/settings.py
import os

LOG_LEVEL = os.getenv("TYPEDUMP_LOG_LEVEL", "INFO")

# Codec tuning for the output side
GZIP_LEVEL = int(os.getenv("TYPEDUMP_GZIP_LEVEL", "9"))
BROTLI_QUALITY = int(os.getenv("TYPEDUMP_BROTLI_QUALITY", "11"))

# Bytes pulled from the input per read
READ_CHUNK = int(os.getenv("TYPEDUMP_READ_CHUNK", str(64 * 1024)))
