"""Version information for httpsig-client"""

__version__ = "0.1.0"
