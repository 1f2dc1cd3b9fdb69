"""
Configuration management for the Speakeasy backend.
"""
import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Supabase (row store + backup bucket)
SUPABASE_URL = os.getenv("SUPABASE_URL", "")
SUPABASE_SERVICE_KEY = os.getenv("SUPABASE_SERVICE_KEY", "")
VIDEO_BUCKET = os.getenv("VIDEO_BUCKET", "videos")

# External analysis service
ANALYSIS_WEBHOOK_URL = os.getenv("ANALYSIS_WEBHOOK_URL", "")
# Unset means the analysis request may wait indefinitely
ANALYSIS_TIMEOUT = float(os.getenv("ANALYSIS_TIMEOUT")) if os.getenv("ANALYSIS_TIMEOUT") else None

# Server configuration
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "3001"))
DEBUG = os.getenv("DEBUG", "false").lower() in ("1", "true", "yes")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Upload configuration
SUPPORTED_VIDEO_FORMATS = ['webm', 'mp4', 'mov', 'mkv']


class Config:
    """Application configuration class."""

    def __init__(self):
        self.supabase_url = SUPABASE_URL
        self.supabase_service_key = SUPABASE_SERVICE_KEY
        self.video_bucket = VIDEO_BUCKET
        self.analysis_webhook_url = ANALYSIS_WEBHOOK_URL
        self.analysis_timeout = ANALYSIS_TIMEOUT
        self.host = HOST
        self.port = PORT
        self.debug = DEBUG
        self.log_level = LOG_LEVEL

    def to_dict(self):
        return {
            "supabase_url": self.supabase_url,
            "supabase_configured": bool(self.supabase_url and self.supabase_service_key),
            "video_bucket": self.video_bucket,
            "analysis_configured": bool(self.analysis_webhook_url),
            "analysis_timeout": self.analysis_timeout,
            "host": self.host,
            "port": self.port,
            "debug": self.debug,
            "log_level": self.log_level,
        }


# Global config instance
config = Config()
