"""Wire schemas and token counting shared by the service layer."""
