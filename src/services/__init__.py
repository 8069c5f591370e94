"""
Application services layer (use cases).

Services orchestrate the domain logic to fulfill application use cases.
They coordinate between entities, ports, and external systems.

This layer contains:
- matcher: title normalization and confidence scoring
- resolution: multi-provider identification and snapshot caching

Services depend on ports (interfaces) from core/, never on concrete
implementations from adapters/.
"""
