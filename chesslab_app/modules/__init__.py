"""Feature modules: each exposes a blueprint plus engine/services layers."""
