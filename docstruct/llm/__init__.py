from docstruct.llm.client_base import BaseModelClient
from docstruct.llm.factory import ModelRequesterFactory
from docstruct.llm.requester import ModelRequester

__all__ = ["BaseModelClient", "ModelRequester", "ModelRequesterFactory"]
