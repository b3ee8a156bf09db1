from importlib.util import module_from_spec, spec_from_file_location
from pathlib import Path
from types import ModuleType
from typing import Optional

from fastapi import APIRouter

# 메인 라우터 생성 (prefix 없음)
router = APIRouter(tags=["Shop"])


def _load_module(module_path: Path) -> Optional[ModuleType]:
    """`products.router.py`처럼 점이 들어간 파일을 경로로 로드합니다."""
    spec = spec_from_file_location(f"shop_{module_path.stem.replace('.', '_')}", module_path)
    if spec is None or spec.loader is None:
        return None
    module = module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def include_routers(parent: APIRouter, directory: Path) -> None:
    """디렉토리의 *.router.py 파일에서 router 객체를 찾아 parent에 포함합니다."""
    # 등록 순서를 고정하기 위해 파일명 기준으로 정렬
    for router_file in sorted(directory.glob("*.router.py")):
        module = _load_module(router_file)
        if module is None:
            continue

        sub_router = getattr(module, "router", None)
        if isinstance(sub_router, APIRouter):
            parent.include_router(sub_router)


include_routers(router, Path(__file__).resolve().parent)
