"""Weekly pelada organizer: match session, voting window and the group's records."""
