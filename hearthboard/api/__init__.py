"""HTTP server and routes for hearthboard."""
