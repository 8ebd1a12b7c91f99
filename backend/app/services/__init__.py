"""
Services Layer

Business logic behind the HTTP routes:
- Accept plain inputs (IDs, field values, sessions)
- Return models or plain results
- Signal failures by raising the tagged failures in app.utils.failures
- Do NOT depend on HTTP request objects (outcome_classifier is the one
  service that renders responses)
"""
