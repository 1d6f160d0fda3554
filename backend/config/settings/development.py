# backend/config/settings/development.py
from .base import *

DEBUG = True

ENVIRONMENT = os.getenv('ENVIRONMENT', 'development')
