"""
Pytest test suite for the Laundry Order Platform backend.

Test categories:
- Unit tests: state machine, pricing, lifecycle services on in-memory SQLite
- API tests: FastAPI app through httpx ASGITransport
- Side effects: fake dispatcher and event-bus subscribers
"""
