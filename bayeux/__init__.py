"""Client for servers speaking the Bayeux protocol over HTTP long-polling."""

__version__ = "2.3.0"