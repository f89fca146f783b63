"""Provider-agnostic building blocks: models, errors, cancellation, logging."""
