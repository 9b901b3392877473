"""
External data providers (TMDb, OMDb, Spotify, scraped HTML pages, etc.).

Provider adapters live under this namespace so they remain decoupled from the
research orchestration (`content_research.research`) and app entrypoints (`api/`).
"""
