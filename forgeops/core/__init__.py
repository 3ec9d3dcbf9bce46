"""Engine components: writer, renderer, scaffold builder, manifests, packaging, signing."""
