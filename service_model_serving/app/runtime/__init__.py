"""Runtime components: the model cache and the prediction service."""
