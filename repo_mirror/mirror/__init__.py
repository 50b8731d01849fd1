"""
Mirror Integration — Parse mirror specs, ensure destinations exist,
clone and force-push each repository.
"""
