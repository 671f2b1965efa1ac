"""Meeting verification and payment settlement service."""
