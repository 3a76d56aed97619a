"""Real-time infrastructure — WebSocket fan-out hub and its client subscriber.

Learn: Events flow in one direction:
1. Route handler writes a record → hub.notify_*() builds an Envelope
2. BroadcastRouter serializes it once → every registered WebSocket
3. RealtimeSubscriber decodes it → LocalEventBus listeners + notifications

Delivery is best-effort and at-most-once. Clients that miss a frame
catch up through the REST API.
"""
