"""Configuration, logging, database and error primitives shared by the app."""
