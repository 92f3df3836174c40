"""Identity provider flows and credential validation."""
