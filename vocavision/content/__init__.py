"""AI content pipeline: images, word content, pronunciation and cross-exam reuse."""
