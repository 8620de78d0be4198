"""Calendar grid tooling: event layout for day, week and month panels."""
