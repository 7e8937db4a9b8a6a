import os
from urllib.parse import urlparse
from dotenv import load_dotenv

load_dotenv(override=True)


def _mongo_uri():
    uri = os.getenv('MONGODB_URI')
    if uri:
        return uri
    # DATABASE_URL doubles as the Mongo URI when it points at a Mongo cluster
    fallback = os.getenv('DATABASE_URL', '')
    if fallback.startswith('mongodb'):
        return fallback
    return None


def _mongo_db_name(uri):
    """Database name from MONGODB_DB, else the URI path, else 'munchclub'"""
    if os.getenv('MONGODB_DB'):
        return os.getenv('MONGODB_DB')
    if uri:
        try:
            return urlparse(uri).path.lstrip('/') or 'munchclub'
        except ValueError:
            return 'munchclub'
    return 'munchclub'


class Config:
    """
    Base configuration for the Munch Club admin backend.
    Everything can be overridden via environment variables or app.config.
    """
    SECRET_KEY = os.getenv('FLASK_SECRET_KEY', 'dev-secret-key-change-in-production')

    DB_DIR = os.getenv('DB_DIR', os.path.join(os.getcwd(), 'databases'))

    # Relational store (orders, users, books, recipes, payments)
    SQLALCHEMY_DATABASE_URI = os.getenv(
        'SQL_DATABASE_URL',
        'sqlite:///' + os.path.join(DB_DIR, 'munchclub.db')
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Document store (coupons)
    MONGODB_URI = _mongo_uri()
    MONGODB_DB = _mongo_db_name(MONGODB_URI)
    COUPONS_COLLECTION = 'coupons'

    # Persistent application log
    LOG_DB = os.getenv('LOG_DB', os.path.join(DB_DIR, 'app_logs.db'))

    # Printer gateway (print-on-demand fulfillment)
    MAIN_APP_URL = os.getenv('NEXT_PUBLIC_MAIN_APP_URL', 'http://localhost:3001')
    PRINTER_GATEWAY_URL = os.getenv('PRINTER_GATEWAY_URL', f"{MAIN_APP_URL}/api/printer")
    PRINTER_API_TIMEOUT = float(os.getenv('PRINTER_API_TIMEOUT', '10'))

    # Admin UI origins allowed to call /api/*
    CORS_ORIGINS = [
        origin.strip()
        for origin in os.getenv('CORS_ORIGINS', 'http://localhost:3000,http://127.0.0.1:3000').split(',')
        if origin.strip()
    ]

    port = int(os.getenv('PORT', '5000'))
