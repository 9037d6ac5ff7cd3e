"""AuriZen core - data locations shared by every package."""
