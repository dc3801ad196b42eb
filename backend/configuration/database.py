from functools import lru_cache
from azure.cosmos import CosmosClient, DatabaseProxy
from azure.identity import DefaultAzureCredential
from backend.configuration.config import Config

@lru_cache(maxsize=1)
def get_database() -> DatabaseProxy:
    """
    Create the Cosmos client on first use.
    Uses the account key when one is configured, otherwise Entra ID credentials.
    """
    credential = Config.COSMOSDB_KEY or DefaultAzureCredential()
    client = CosmosClient(
        url=Config.COSMOSDB_ENDPOINT,
        credential=credential
    )
    return client.get_database_client(Config.COSMOSDB_DATABASE_NAME)

def get_container(container_key: str):
    """
    Dependency that provides the CosmosDB container client
    Args:
        container_key (str): Key of the container to get (bookings, availabilities, skills)
    Returns:
        Container client for the specified container
    """
    if container_key not in Config.COSMOSDB_CONTAINER_NAME:
        raise ValueError(f"Container {container_key} not found")
    return get_database().get_container_client(Config.COSMOSDB_CONTAINER_NAME[container_key])

def get_bookings_container():
    return get_container("bookings")

def get_availabilities_container():
    return get_container("availabilities")

def get_skills_container():
    return get_container("skills")
