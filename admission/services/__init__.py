"""Domain services. Each function takes the caller's Session and raises admission.errors."""
