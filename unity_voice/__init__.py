"""Unity Voice progression backend."""
