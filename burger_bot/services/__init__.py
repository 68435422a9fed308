"""
Services Package for Burger Bot
===============================

Stateful components and clients for the systems around the dialogue.

Modules:
--------
- session: In-memory conversation store with per-conversation locking
- order: Order backend client and the finalizer that turns a completed
  conversation into a submitted order
- store_status: Cached open/closed flag from the store-status service
- priority: Conversations waiting for a human, with the follow-up timer
- outbox: Queue of outbound WhatsApp messages drained in the background

Each service receives its collaborators in its constructor; runtime.py
wires the production set once per process.
"""
