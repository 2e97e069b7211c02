"""Domain Layer: jobs, outcomes, errors and the ports the pipeline depends on."""
