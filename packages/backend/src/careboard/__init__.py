"""careboard — hospital dashboard backend with a real-time notification hub.

Clinical writes (patients, vitals, labs, alerts, AI insights) are pushed
to every connected dashboard over WebSocket as typed envelopes.
"""

__version__ = "0.1.0"
