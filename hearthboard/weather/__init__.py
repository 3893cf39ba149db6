"""Weather lookup via Open-Meteo."""
