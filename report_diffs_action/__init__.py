"""Visual regression test action for GitHub pull requests."""
