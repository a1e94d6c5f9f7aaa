import hashlib
import io

from b2cloud import connect



def main():
    # Example usage: credentials come from B2_ACCOUNT_ID / B2_APPLICATION_KEY
    with connect() as session:
        bucket = session.create_bucket("example-bucket", "allPrivate")

        data = b"hello"
        info = bucket.upload_file(data, "a.txt", len(data), hashlib.sha1(data).hexdigest())
        print(f"Uploaded: {info.file_name} ({info.content_length} bytes)")

        for entry in bucket.iter_file_names():
            print(f"Listed: {entry.file_name}")

        sink = io.BytesIO()
        info.download(sink)
        print(f"Downloaded: {sink.getvalue()!r}")

        info.delete()
        bucket.delete()

if __name__ == "__main__":
    main()
