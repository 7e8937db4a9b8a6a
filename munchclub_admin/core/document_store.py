"""
Document store handle for coupon records.

A CouponStore is built once per app and shared by every request thread. The
owned client is opened once (at app start, or on first use) and kept for the
life of the process; a ``with`` block only hands out the store and never
closes it. close() releases an owned client at shutdown. A client passed in
by the caller is used as-is and never closed by the store.
"""

import logging
import threading

from pymongo import MongoClient

logger = logging.getLogger(__name__)


class CouponStore:
    """Shared, thread-safe access to the coupons collection"""

    def __init__(self, uri=None, db_name='munchclub', collection='coupons', client=None,
                 timeout_ms=5000):
        self.uri = uri
        self.db_name = db_name
        self.collection_name = collection
        self.timeout_ms = timeout_ms
        self._client = client
        self._owns_client = client is None
        self._lock = threading.Lock()

    @property
    def connected(self):
        return self._client is not None

    def connect(self):
        """Open the client if this store owns one and it is not open yet"""
        if self._client is not None:
            return self
        with self._lock:
            if self._client is None:
                if not self.uri:
                    raise RuntimeError('MONGODB_URI or DATABASE_URL environment variable is not set')
                self._client = MongoClient(self.uri, serverSelectionTimeoutMS=self.timeout_ms)
                logger.debug("Connected coupon store to database %s", self.db_name)
        return self

    def close(self):
        """Release the client; injected clients are left open for their owner"""
        with self._lock:
            if self._client is not None and self._owns_client:
                self._client.close()
                self._client = None
                logger.debug("Closed coupon store connection")

    def __enter__(self):
        return self.connect()

    def __exit__(self, exc_type, exc, tb):
        return False

    @property
    def database(self):
        client = self._client
        if client is None:
            raise RuntimeError('Coupon store is not connected')
        return client[self.db_name]

    @property
    def coupons(self):
        return self.database[self.collection_name]
