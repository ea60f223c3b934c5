# Shared helpers for the Motiff backend
