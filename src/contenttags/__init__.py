"""Tags for content management applications: tagging of any kind of content,
popularity ranking, co-occurrence and tag clouds."""
