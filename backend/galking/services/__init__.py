"""Services package: the learning engine lives in galking.services.learning."""
