"""Server-rendered operator UI.

- login form with field-level errors (manual submit or serverUrl/apiKey query params)
- instance dashboard, guarded by a complete local session
- plain HTML forms + redirects, no client-side runtime
"""
