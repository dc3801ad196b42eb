import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

class Config:
    # Azure CosmosDB Configuration
    COSMOSDB_ENDPOINT = os.getenv("COSMOS_DB_ENDPOINT")
    COSMOSDB_KEY = os.getenv("COSMOS_DB_KEY")
    COSMOSDB_DATABASE_NAME = os.getenv("COSMOS_DB_DATABASE")
    COSMOSDB_CONTAINER_NAME = {
        "bookings": os.getenv("COSMOS_CONTAINERS_BOOKINGS", "bookings"),
        "availabilities": os.getenv("COSMOS_CONTAINERS_AVAILABILITIES", "availabilities"),
        "skills": os.getenv("COSMOS_CONTAINERS_SKILLS", "skills")
    }

    # Application Insights
    APPLICATIONINSIGHTS_CONNECTION_STRING = os.getenv("APPINSIGHTS_INSTRUMENTATIONKEY")

    # Scheduling
    DEFAULT_TIMEZONE = os.getenv("DEFAULT_TIMEZONE", "UTC")
