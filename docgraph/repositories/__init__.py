"""Entity repositories: CRUD plus the edges each entity owns."""
