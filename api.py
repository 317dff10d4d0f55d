"""
FastAPI REST API for Doc Query.

Parses documents with embedded SQL, PPL and REST queries and executes them
against OpenSearch.
"""

import os
from functools import lru_cache
from typing import List, Optional

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, HTTPException
from pydantic import BaseModel, Field

from doc_query import DocumentQueryRunner, Position, QueryBlock, QueryType, validate_query
from doc_query.core.models import (
    ConfigurationBlock,
    ConnectionTestResult,
    DocumentFormat,
    QueryMetadata,
    ValidationResult,
)
from doc_query.orchestrator import BlockExecution

load_dotenv()

app = FastAPI(
    title="Doc Query API",
    description="Run SQL, PPL and REST queries embedded in Markdown and reStructuredText documents",
    version="1.0.0",
)


class DocumentRequest(BaseModel):
    """Request model for a document."""
    text: str = Field(..., description="Full document text")
    format: str = Field("markdown", description="markdown, rst or a file name")


class ParseResponse(BaseModel):
    """Response model for document parsing."""
    query_blocks: List[QueryBlock]
    configuration_blocks: List[ConfigurationBlock]


class ValidateRequest(BaseModel):
    """Request model for query validation."""
    content: str = Field(..., description="Query text or API body")
    query_type: QueryType = Field(..., description="sql, ppl or opensearch-api")
    metadata: Optional[QueryMetadata] = Field(None, description="Method and endpoint for API queries")


class ExecuteRequest(DocumentRequest):
    """Request model for executing the block under a position."""
    line: int = Field(..., ge=0, description="Zero-based line inside the block")
    character: int = Field(0, ge=0, description="Zero-based character on the line")
    explain: bool = Field(False, description="Also run the explain query (SQL/PPL)")


@lru_cache()
def get_runner() -> DocumentQueryRunner:
    """Create the shared runner from environment configuration."""
    return DocumentQueryRunner.from_env()


def _resolve_format(value: str) -> DocumentFormat:
    try:
        return DocumentFormat.resolve(value)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.post("/parse", response_model=ParseResponse)
async def parse(request: DocumentRequest, runner: DocumentQueryRunner = Depends(get_runner)):
    """Extract query and configuration blocks, overrides attached."""
    document_format = _resolve_format(request.format)
    return ParseResponse(
        query_blocks=runner.parse(request.text, document_format),
        configuration_blocks=runner.configuration_blocks(request.text, document_format),
    )


@app.post("/validate", response_model=ValidationResult)
async def validate(request: ValidateRequest):
    """Validate a query without executing it."""
    return validate_query(request.content, request.query_type, request.metadata)


@app.post("/execute", response_model=BlockExecution)
async def execute(request: ExecuteRequest, runner: DocumentQueryRunner = Depends(get_runner)):
    """
    Execute the query block under a position.

    Query failures are part of the response body; only a missing block is
    an HTTP error.
    """
    document_format = _resolve_format(request.format)
    position = Position(line=request.line, character=request.character)

    block = runner.block_at(request.text, position, document_format)
    if block is None:
        raise HTTPException(status_code=404, detail=f"No query block at line {request.line}")

    if request.explain:
        return await runner.execute_with_explain_async(block)

    result = await runner.execute_block_async(block)
    return BlockExecution(block=block, result=result)


@app.get("/health", response_model=ConnectionTestResult)
def health(runner: DocumentQueryRunner = Depends(get_runner)):
    """Check the connection to the configured OpenSearch cluster."""
    return runner.test_connection()


if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("API_PORT", "8000"))
    host = os.getenv("API_HOST", "0.0.0.0")

    uvicorn.run(app, host=host, port=port)
