"""Request and result models exchanged with the HTTP interface."""
