# watermarker/worker.py
import concurrent.futures
import logging
import threading

from watermarker.pipeline import render

logger = logging.getLogger(__name__)


class RenderJob:
    """一次提交的渲染任务:future 加上它自己的取消事件"""

    def __init__(self, future, cancel_event):
        self.future = future
        self.cancel_event = cancel_event

    def result(self, timeout=None):
        return self.future.result(timeout=timeout)

    def cancel(self):
        """未开始的任务直接取消;已开始的任务在下一个阶段之间中止"""
        self.cancel_event.set()
        return self.future.cancel()


class CompositePool:
    """
    用线程池并发执行互相独立的合成请求。

    请求之间没有共享的可变状态,也没有缓存,每个请求都完整重新计算。
    """

    def __init__(self, max_workers=4):
        self.max_workers = max_workers
        self._executor = concurrent.futures.ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix='watermark')

    def submit(self, request):
        cancel_event = threading.Event()
        future = self._executor.submit(render, request, cancel_event)
        return RenderJob(future, cancel_event)

    def shutdown(self, wait=True):
        self._executor.shutdown(wait=wait)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.shutdown()
