from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from pydantic import BaseModel, Field

from runagent.core.errors import NotFoundError
from runagent.filesync.service import FilePayload, FileSyncService
from runagent.jobs.runner import JobRunner

router = APIRouter()


class RunRequest(BaseModel):
    workdir: str
    cmd: list[str]


class OfferFilesRequest(BaseModel):
    workdir: str
    hashes: dict[str, str] = Field(default_factory=dict)


class FileInfo(BaseModel):
    data: str
    executable: bool = False


class SendFilesRequest(BaseModel):
    workdir: str
    files: dict[str, FileInfo] = Field(default_factory=dict)


class GetFileRequest(BaseModel):
    workdir: str
    path: str


def _runner(request: Request) -> JobRunner:
    return request.app.state.runner


def _file_sync(request: Request) -> FileSyncService:
    return request.app.state.file_sync


@router.get("/ping")
def ping():
    return PlainTextResponse("pong")


@router.post("/run")
async def run(payload: RunRequest, request: Request):
    job_id = await _runner(request).run(payload.workdir, payload.cmd)
    return PlainTextResponse(job_id)


@router.get("/wait-run/{job_id}")
async def wait_run(job_id: str, request: Request):
    status = await _runner(request).wait_for_terminal(job_id)
    return PlainTextResponse(status.wire_value)


@router.get("/jobs")
def list_jobs(request: Request):
    return [job.to_dict() for job in _runner(request).registry.list_jobs()]


@router.get("/jobs/{job_id}")
def get_job(job_id: str, request: Request):
    try:
        job = _runner(request).registry.get(job_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return job.to_dict()


@router.post("/offer-files")
def offer_files(payload: OfferFilesRequest, request: Request):
    needed = _file_sync(request).diff(payload.workdir, payload.hashes)
    return JSONResponse(content=list(needed))


@router.post("/send-files")
def send_files(payload: SendFilesRequest, request: Request):
    files = {
        name: FilePayload(data=info.data, executable=info.executable)
        for name, info in payload.files.items()
    }
    _file_sync(request).push(payload.workdir, files)
    return Response(status_code=200)


@router.post("/get-file")
def get_file(payload: GetFileRequest, request: Request):
    try:
        encoded = _file_sync(request).pull(payload.workdir, payload.path)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return PlainTextResponse(encoded)
