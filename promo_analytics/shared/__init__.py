"""Storage layer shared by the API services: pool, models, repositories, migrations."""
