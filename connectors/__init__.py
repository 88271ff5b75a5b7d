"""
connectors — clients for the two systems the bridge sits between.

  • Slack: OAuth2 code exchange, profile, messages, file download / upload
  • Reactor: event ingestion and per-author state lookup
  • RSA encryption of Slack tokens into opaque state
"""
