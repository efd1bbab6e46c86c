"""
Flask application settings.
Values come from the environment (a local .env file is loaded first):
secret key, database, object storage and the CORS origin of the frontend.
"""

import os

from dotenv import load_dotenv

load_dotenv()

MiB = 1024 * 1024


class Config:
    SECRET_KEY = os.getenv('SECRET_KEY', 'change-me')
    SQLALCHEMY_DATABASE_URI = os.getenv('DATABASE_URL', 'sqlite:///resources.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # The API speaks JSON; forms are only used for validation.
    WTF_CSRF_ENABLED = False

    SUPABASE_URL = os.getenv('SUPABASE_URL')
    SUPABASE_KEY = os.getenv('SUPABASE_KEY')
    STORAGE_BUCKET = os.getenv('STORAGE_BUCKET', 'resources')
    STORAGE_FOLDER = os.getenv('STORAGE_FOLDER', 'college-resources')

    MAX_UPLOAD_SIZE = int(os.getenv('MAX_UPLOAD_SIZE', 10 * MiB))
    # Leaves room for the multipart envelope around a maximum-size file.
    MAX_CONTENT_LENGTH = MAX_UPLOAD_SIZE + MiB

    FRONTEND_URL = os.getenv('FRONTEND_URL', 'http://localhost:5173')
    PDF_VIEWER_URL = os.getenv('PDF_VIEWER_URL', 'https://docs.google.com/viewer?embedded=true&url={url}')

    NOTIFICATION_LIMIT = 50
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = 'test'
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    SUPABASE_URL = None
    SUPABASE_KEY = None
    LOG_LEVEL = 'WARNING'
