"""
Smoke script for the Cloudinary integration
Run this to verify your Cloudinary credentials are working
"""
import os
import sys
import tempfile
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

REQUIRED = ("CLOUDINARY_CLOUD_NAME", "CLOUDINARY_API_KEY", "CLOUDINARY_API_SECRET")
missing = [name for name in REQUIRED if not os.getenv(name)]

if missing:
    print(f"ERROR: {', '.join(missing)} not found in .env file")
    print("\nPlease:")
    print("1. Create a .env file next to this script")
    print("2. Add the Cloudinary credentials from your dashboard")
    sys.exit(1)

print(f"Cloud name found: {os.getenv('CLOUDINARY_CLOUD_NAME')}")
print("\nTesting Cloudinary upload and delete...")

from app.core.storage import StorageClient, StorageError

# 1x1 transparent GIF
PIXEL = (
    b"GIF89a\x01\x00\x01\x00\x80\x00\x00\x00\x00\x00\xff\xff\xff!\xf9\x04\x01\x00"
    b"\x00\x00\x00,\x00\x00\x00\x00\x01\x00\x01\x00\x00\x02\x02D\x01\x00;"
)

storage = StorageClient()
with tempfile.NamedTemporaryFile(suffix=".gif", delete=False) as handle:
    handle.write(PIXEL)
    path = handle.name

try:
    media = storage.upload(path)
    print(f"Upload OK: {media.url}")
    print(f"   public_id: {media.public_id}")

    if storage.delete(media.public_id, media.resource_type):
        print("Delete OK")
    else:
        print("Delete was not confirmed by Cloudinary")
        sys.exit(1)
except StorageError as e:
    print(f"Cloudinary error: {e}")
    print("   Check your credentials and account limits")
    sys.exit(1)
finally:
    os.remove(path)

print("\nAll Cloudinary checks passed.")
