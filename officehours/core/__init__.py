"""Configuration, constants, exceptions and concurrency primitives."""
