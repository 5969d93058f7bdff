"""Configuration, logging, errors and CouchDB access."""
