"""
Workforce Task Intelligence — Production Package
================================================
Resolves a free-text job title to an O*NET occupation, classifies its task
statements as automate / augment / retain with an LLM, and streams the
results progressively.  Hexagonal (Ports & Adapters) architecture.

Layer map
─────────────────────────────────────────────────────
  config/       All tuneable settings, matcher constants & prompt strings
  domain/       Pure business objects (models, exceptions) — no I/O
  ports/        Abstract interfaces (Python Protocols)
  adapters/     Concrete implementations of each Port (Anthropic, OpenAI, JSON files…)
  services/     Matcher, task store, orchestrator; depend only on Ports
  interfaces/   Delivery layer: Flask API + SSE framing, CLI
  client/       Stream consumer and progressive view-state reducer
  tests/        Full test suite: unit / e2e

Swapping any external dependency (LLM provider, data source):
  1. Write a new adapter in adapters/ implementing the relevant Port
  2. Change the single wiring line in services/container.py
  3. Done — zero other files touched
"""
__version__ = "1.0.0"
