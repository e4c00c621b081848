"""aliacan - shell alias manager with rotating backups"""

__version__ = "0.1.0"
