"""Scan endpoints: stage images, run the analysis, retry or reset."""

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status

from vitalscope.factory import ServiceFactory
from vitalscope.adapters.rest.dependencies import get_factory
from vitalscope.adapters.rest.schemas import ScanOut, UploadOut

router = APIRouter(prefix="/scan", tags=["scan"])


@router.get("", response_model=ScanOut)
async def get_scan(factory: ServiceFactory = Depends(get_factory)):
    return ScanOut.from_snapshot(factory.scan_orchestrator.snapshot())


@router.post("/images", response_model=UploadOut)
async def upload_images(
    files: list[UploadFile] = File(...),
    factory: ServiceFactory = Depends(get_factory),
):
    """Add one batch of photos. Unreadable files are skipped, order is kept."""
    ingestor = factory.scan_orchestrator.ingestor
    accepted = await ingestor.add_files(files)
    return UploadOut(
        accepted=len(accepted),
        rejected=len(files) - len(accepted),
        imageCount=len(ingestor),
    )


@router.delete("/images/{index}", response_model=ScanOut)
async def remove_image(index: int, factory: ServiceFactory = Depends(get_factory)):
    orchestrator = factory.scan_orchestrator
    try:
        orchestrator.ingestor.remove_at(index)
    except IndexError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return ScanOut.from_snapshot(orchestrator.snapshot())


@router.post("", response_model=ScanOut)
async def start_scan(factory: ServiceFactory = Depends(get_factory)):
    """Analyze the staged images. 409 if the profile is incomplete or a scan is running."""
    snapshot = await factory.scan_orchestrator.start_scan()
    return ScanOut.from_snapshot(snapshot)


@router.post("/retry", response_model=ScanOut)
async def retry_scan(factory: ServiceFactory = Depends(get_factory)):
    return ScanOut.from_snapshot(factory.scan_orchestrator.retry())


@router.post("/reset", response_model=ScanOut)
async def reset_scan(factory: ServiceFactory = Depends(get_factory)):
    return ScanOut.from_snapshot(factory.scan_orchestrator.reset_scan())
