"""
Storage backends for scraped records and raw API payloads.

Records go to an append-only dataset (local JSON Lines file or Postgres).
Raw API payloads go to a key/value blob store (local filesystem or
S3-compatible cloud storage), overwritten per key.
"""
import json
import logging
import os
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict

import psycopg2
from psycopg2.extras import Json

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """A dataset or blob write failed."""


class DatasetStorage(ABC):
    """Append-only record sink."""

    @abstractmethod
    def append_record(self, kind: str, record: Dict[str, Any]) -> None:
        """
        Append one record.

        Args:
            kind: Record type ("item" or "listing_row")
            record: Flat mapping of string / list-of-string fields

        Raises:
            StorageError: if the write failed
        """

    def close(self) -> None:
        pass


class BlobStorage(ABC):
    """Key/value store for raw payloads; a second put on a key replaces the first."""

    @abstractmethod
    def put_blob(self, key: str, payload: Any, content_type: str = 'application/json') -> str:
        """
        Store payload under key and return its storage path/URL.

        Raises:
            StorageError: if the write failed
        """


class JsonLinesDatasetStorage(DatasetStorage):
    """Local dataset: one JSON object per line."""

    def __init__(self, path: str = 'data/dataset.jsonl'):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    def append_record(self, kind: str, record: Dict[str, Any]) -> None:
        try:
            line = json.dumps({'record_type': kind, **record}, ensure_ascii=False)
            with self._lock, open(self.path, 'a', encoding='utf-8') as f:
                f.write(line + '\n')
        except (OSError, TypeError, ValueError) as e:
            raise StorageError(f'Failed to append to {self.path}: {e}') from e


class PostgresDatasetStorage(DatasetStorage):
    """
    Postgres dataset. Rows are only ever inserted, never updated:

        CREATE TABLE records (
            id BIGSERIAL PRIMARY KEY,
            dataset_id TEXT,
            record_type TEXT NOT NULL,
            url TEXT,
            data JSONB NOT NULL,
            observed_at TIMESTAMPTZ NOT NULL DEFAULT now()
        );
    """

    def __init__(self, database_url: str, dataset_id: str = None):
        self.dataset_id = dataset_id
        try:
            self.conn = psycopg2.connect(database_url)
        except psycopg2.Error as e:
            raise StorageError(f'Failed to connect to database: {e}') from e

    def append_record(self, kind: str, record: Dict[str, Any]) -> None:
        url = record.get('source_url') or record.get('absolute_url')
        try:
            with self.conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO records (dataset_id, record_type, url, data, observed_at)
                    VALUES (%s, %s, %s, %s, %s)
                    """,
                    (self.dataset_id, kind, url, Json(record), datetime.now(timezone.utc)),
                )
            self.conn.commit()
        except psycopg2.Error as e:
            if not self.conn.closed:
                try:
                    self.conn.rollback()
                except psycopg2.Error as rollback_error:
                    logger.warning(f'Rollback failed after insert error: {rollback_error}')
            raise StorageError(f'Error inserting record {url}: {e}') from e

    def close(self) -> None:
        self.conn.close()


class LocalBlobStorage(BlobStorage):
    """Local filesystem blob store: <base_path>/<key>.json"""

    def __init__(self, base_path: str = 'data/blobs'):
        self.base_path = Path(base_path)
        self.base_path.mkdir(parents=True, exist_ok=True)

    def _get_filepath(self, key: str) -> Path:
        filepath = self.base_path / f'{key}.json'
        filepath.parent.mkdir(parents=True, exist_ok=True)
        return filepath

    def put_blob(self, key: str, payload: Any, content_type: str = 'application/json') -> str:
        try:
            filepath = self._get_filepath(key)
            # Readers only ever see a complete file
            tmp_path = filepath.with_suffix('.json.tmp')
            with open(tmp_path, 'w', encoding='utf-8') as f:
                json.dump(payload, f, ensure_ascii=False)
            os.replace(tmp_path, filepath)
        except (OSError, TypeError, ValueError) as e:
            raise StorageError(f'Failed to save blob {key}: {e}') from e
        return str(filepath)


class S3BlobStorage(BlobStorage):
    """S3-compatible cloud storage (AWS S3, DigitalOcean Spaces, etc.)."""

    def __init__(self,
                 endpoint_url: str,
                 bucket_name: str,
                 access_key_id: str,
                 secret_access_key: str,
                 region: str = 'us-east-1',
                 prefix: str = ''):
        try:
            import boto3
        except ImportError:
            raise ImportError('boto3 is required for S3 storage. Install with: pip install boto3')

        self.bucket_name = bucket_name
        self.prefix = prefix.strip('/')
        self.s3_client = boto3.client(
            's3',
            endpoint_url=endpoint_url,
            aws_access_key_id=access_key_id,
            aws_secret_access_key=secret_access_key,
            region_name=region
        )

    def _get_s3_key(self, key: str) -> str:
        return f'{self.prefix}/{key}' if self.prefix else key

    def put_blob(self, key: str, payload: Any, content_type: str = 'application/json') -> str:
        from botocore.exceptions import BotoCoreError, ClientError

        s3_key = self._get_s3_key(key)
        try:
            body = json.dumps(payload, ensure_ascii=False).encode('utf-8')
            self.s3_client.put_object(
                Bucket=self.bucket_name,
                Key=s3_key,
                Body=body,
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError, TypeError, ValueError) as e:
            raise StorageError(f'Failed to upload blob {s3_key}: {e}') from e
        return s3_key


def get_dataset_storage() -> DatasetStorage:
    """
    Factory function to get the dataset backend.
    Reads from environment variables:
    - DATASET_STORAGE_TYPE: 'jsonl' or 'postgres' (default: 'jsonl')
    - For jsonl: DATASET_PATH
    - For postgres: DATABASE_URL, DATASET_ID
    """
    storage_type = os.environ.get('DATASET_STORAGE_TYPE', 'jsonl').lower()

    if storage_type == 'postgres':
        database_url = os.environ.get('DATABASE_URL')
        if not database_url:
            raise ValueError('Postgres dataset storage requires DATABASE_URL')
        return PostgresDatasetStorage(database_url, os.environ.get('DATASET_ID'))

    else:  # default to a local JSON Lines file
        return JsonLinesDatasetStorage(os.environ.get('DATASET_PATH', 'data/dataset.jsonl'))


def get_blob_storage() -> BlobStorage:
    """
    Factory function to get the blob store backend.
    Reads from environment variables:
    - BLOB_STORAGE_TYPE: 'local' or 's3' (default: 'local')
    - For S3: BLOB_STORAGE_S3_ENDPOINT, BLOB_STORAGE_S3_BUCKET, etc.
    """
    storage_type = os.environ.get('BLOB_STORAGE_TYPE', 'local').lower()

    if storage_type == 's3':
        endpoint = os.environ.get('BLOB_STORAGE_S3_ENDPOINT')
        bucket = os.environ.get('BLOB_STORAGE_S3_BUCKET')
        access_key = os.environ.get('BLOB_STORAGE_S3_ACCESS_KEY')
        secret_key = os.environ.get('BLOB_STORAGE_S3_SECRET_KEY')
        region = os.environ.get('BLOB_STORAGE_S3_REGION', 'us-east-1')
        prefix = os.environ.get('BLOB_STORAGE_S3_PREFIX', '')

        if not all([endpoint, bucket, access_key, secret_key]):
            raise ValueError(
                'S3 storage requires: BLOB_STORAGE_S3_ENDPOINT, '
                'BLOB_STORAGE_S3_BUCKET, BLOB_STORAGE_S3_ACCESS_KEY, '
                'BLOB_STORAGE_S3_SECRET_KEY'
            )

        return S3BlobStorage(endpoint, bucket, access_key, secret_key, region, prefix)

    else:  # default to local
        return LocalBlobStorage(os.environ.get('BLOB_STORAGE_LOCAL_PATH', 'data/blobs'))
