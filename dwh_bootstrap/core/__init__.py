"""Configuration, logging, models and engine utilities shared by the provisioner."""
