"""Discord notification composition and delivery."""
