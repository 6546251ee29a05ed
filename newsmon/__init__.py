"""Change-monitoring news scraper."""
