"""HTTP routers of the TuneCircle API."""
