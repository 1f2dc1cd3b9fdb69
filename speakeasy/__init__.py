"""
Speakeasy Backend Package
=========================

Flask backend for recorded video responses: submission records, media
dispatch to the analysis service, and feedback reconciliation.

Structure:
- routes/: API route blueprints
- services/: Business logic services
- config.py: Configuration management
- errors.py: Error taxonomy
- models.py: Submissions and normalized feedback
"""

from .config import config, Config

__version__ = "1.0.0"

__all__ = ['config', 'Config']
