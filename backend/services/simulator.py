import logging
import threading
from collections import OrderedDict

import numpy as np
from sklearn.metrics import accuracy_score

from algorithms.core import InsufficientDataError, InvalidInputError, Point, StepInfo, to_finite, to_label
from algorithms.registry import ALGORITHMS, AlgorithmKind, build_algorithm
from dataset_loader import generate_random, load_dataset
from rendering.snapshot import MatplotlibSurface
from rendering.surface import CommandCanvas

logger = logging.getLogger(__name__)

MIN_POINTS = 2
MAX_SESSIONS = 256
INSUFFICIENT_DATA_MESSAGE = "Please add at least 2 data points first!"

ACTIONS = (
    "state", "select_algorithm", "load_dataset", "generate_data", "clear_data", "add_point",
    "set_parameter", "run", "step", "reset", "snapshot",
)


def ready_step():
    return StepInfo(0, "Ready", 'Click "Run" or "Step Forward" to begin.')


def _field(event, name):
    if name not in event:
        raise InvalidInputError(f"event '{event.get('action')}' is missing '{name}'")
    return event[name]


class Simulator:
    """
    控制器：持有当前数据集与唯一的活动算法实例，把界面事件分派给该实例并重绘
    """

    def __init__(self, width=700, height=500, algorithm="linear-regression", dataset="sample1",
                 random_count=20, random_state=None):
        self.width = width
        self.height = height
        self.random_count = random_count
        self.random_state = random_state
        # 同一会话的事件可能来自不同线程，handle() 全程持锁，保证事件按顺序执行
        self.lock = threading.Lock()
        # 每个算法各自保存滑块参数，切换算法时不丢失
        self.params = {kind: cls.default_params() for kind, cls in ALGORITHMS.items()}
        self.kind = AlgorithmKind.parse(algorithm)
        self.algorithm = None
        self.dataset_name = dataset
        self.points = load_dataset(dataset)
        self.last_step = ready_step()
        self._pulse = None
        self.select_algorithm(self.kind)

    @classmethod
    def from_config(cls, config):
        return cls(width=config.get("CANVAS_WIDTH", 700),
                   height=config.get("CANVAS_HEIGHT", 500),
                   algorithm=config.get("DEFAULT_ALGORITHM", "linear-regression"),
                   dataset=config.get("DEFAULT_DATASET", "sample1"),
                   random_count=config.get("RANDOM_POINT_COUNT", 20))

    # ---------- 算法 ----------

    def select_algorithm(self, kind):
        self.kind = AlgorithmKind.parse(kind)
        params = dict(self.params[self.kind])
        if self.kind == AlgorithmKind.DECISION_TREE:
            params.update(width=self.width, height=self.height)
        elif self.kind == AlgorithmKind.K_MEANS:
            params["random_state"] = self.random_state
        self.algorithm = build_algorithm(self.kind, params)
        self._reinitialize()
        logger.info(f"选择算法: {self.kind.value}")

    def _reinitialize(self):
        self.algorithm.init(self.points)
        self.last_step = ready_step()

    def set_parameter(self, param_id, value):
        spec = self.algorithm.set_param(param_id, value)
        self.params[self.kind][spec.attr] = spec.coerce(value)
        if spec.reinitialize:
            self._reinitialize()
        return spec

    # ---------- 数据集 ----------

    def load_dataset(self, name):
        self.points = load_dataset(name)
        self.dataset_name = name
        self._reinitialize()

    def generate_data(self, count=None, pattern=None):
        if pattern is None:
            pattern = "clusters" if self.kind == AlgorithmKind.K_MEANS else "linear"
        self.points = generate_random(count if count is not None else self.random_count,
                                      self.width, self.height, pattern, self.random_state)
        self.dataset_name = "random"
        self._reinitialize()

    def clear_data(self):
        self.points = []
        self.dataset_name = "custom"
        self._reinitialize()

    def add_point(self, x, y, label=None):
        # 坐标必须是画布内的有限数值
        x, y = to_finite("x", x), to_finite("y", y)
        if not (0 <= x <= self.width and 0 <= y <= self.height):
            raise InvalidInputError(f"point ({x}, {y}) is outside the {self.width}x{self.height} canvas")
        label = to_label(label)
        # 决策树模式下新点交替标注两个类别
        if label is None and self.kind == AlgorithmKind.DECISION_TREE:
            label = len(self.points) % 2
        point = Point(x, y, label)
        self.points = self.points + [point]
        self.dataset_name = "custom"
        self._reinitialize()
        self._pulse = point
        return point

    # ---------- 执行 ----------

    def _require_data(self):
        if len(self.points) < MIN_POINTS:
            logger.warning(f"数据点不足: {len(self.points)} < {MIN_POINTS}")
            raise InsufficientDataError("simulator", MIN_POINTS, len(self.points))

    def run(self):
        self._require_data()
        result = self.algorithm.run()
        self.last_step = StepInfo("Complete", "Algorithm Finished", "View the results and statistics below.")
        return result

    def step(self):
        self._require_data()
        self.last_step = self.algorithm.step()
        return self.last_step

    def reset(self):
        self.algorithm.reset()
        self.last_step = ready_step()
        return self.last_step

    # ---------- 可视化 / 统计 ----------

    def render(self):
        canvas = CommandCanvas(self.width, self.height)
        self.algorithm.visualize(canvas)
        if self._pulse is not None:
            canvas.pulse_point(self._pulse.x, self._pulse.y)
            self._pulse = None
        return canvas.to_list()

    def snapshot_png(self):
        surface = MatplotlibSurface(self.width, self.height)
        self.algorithm.visualize(surface)
        return surface.to_base64()

    def metrics(self):
        algo = self.algorithm
        metrics = {}
        if self.kind == AlgorithmKind.LINEAR_REGRESSION and algo.residuals:
            residuals = np.asarray(algo.residuals, dtype=float)
            metrics.update(mse=algo.mse, r_squared=algo.r_squared,
                           residual_mean=float(np.mean(residuals)), residual_std=float(np.std(residuals)),
                           residual_min=float(np.min(residuals)), residual_max=float(np.max(residuals)))
        elif self.kind == AlgorithmKind.K_MEANS and len(algo.centroids) > 0:
            metrics.update(wcss=algo.calculate_wcss(), iterations=algo.iteration,
                           cluster_sizes=algo.cluster_sizes())
        elif self.kind == AlgorithmKind.DECISION_TREE and algo.tree is not None:
            y_true = [p.label for p in algo.points]
            y_pred = [algo.predict(p.x, p.y) for p in algo.points]
            metrics.update(accuracy=float(accuracy_score(y_true, y_pred)), depth=algo.depth())
        return metrics

    def stats(self):
        stats = self.algorithm.get_stats()
        if self.kind == AlgorithmKind.DECISION_TREE and self.algorithm.tree is not None:
            stats["Accuracy"] = f"{self.metrics()['accuracy'] * 100:.1f}%"
        return stats

    def parameters(self):
        current = self.params[self.kind]
        return [dict(spec.to_dict(), value=current[spec.attr]) for spec in self.algorithm.parameters]

    def state(self):
        return {
            "algorithm": self.kind.value,
            "dataset": self.dataset_name,
            "canvas": {"width": self.width, "height": self.height},
            "points": [p.to_dict() for p in self.algorithm.points],
            "commands": self.render(),
            "stats": self.stats(),
            "metrics": self.metrics(),
            "step_info": self.last_step.to_dict(),
            "parameters": self.parameters(),
            "state": self.algorithm.get_state(),
        }

    # ---------- 事件分派 ----------

    def handle(self, event):
        """
        对接前端事件的核心分派函数，返回 {"code", "message", "data"}
        """
        with self.lock:
            try:
                if not isinstance(event, dict):
                    raise InvalidInputError(f"event must be a JSON object, got {type(event).__name__}")
                action = event.get("action", "state")
                logger.info(f"处理事件: {action} - 算法: {self.kind.value}")
                self._apply(action, event)

                data = self.state()
                if action == "snapshot":
                    data["snapshot"] = self.snapshot_png()
                return {"code": 200, "message": "success", "data": data}

            except InsufficientDataError as e:
                logger.warning(f"数据不足: {str(e)}")
                return {"code": 400, "message": INSUFFICIENT_DATA_MESSAGE, "data": self.state()}
            except InvalidInputError as e:
                logger.warning(f"无效事件 {event!r}: {str(e)}")
                return {"code": 400, "message": f"请求无效：{str(e)}", "data": {}}
            except Exception as e:
                logger.error(f"模拟器错误: {str(e)}", exc_info=True)
                return {"code": 500, "message": f"服务端错误：{str(e)}", "data": {}}

    def _apply(self, action, event):
        if action == "state" or action == "snapshot":
            pass
        elif action == "select_algorithm":
            self.select_algorithm(_field(event, "algorithm"))
        elif action == "load_dataset":
            self.load_dataset(str(_field(event, "dataset")))
        elif action == "generate_data":
            pattern = event.get("pattern")
            self.generate_data(event.get("count"), None if pattern is None else str(pattern))
        elif action == "clear_data":
            self.clear_data()
        elif action == "add_point":
            self.add_point(_field(event, "x"), _field(event, "y"), event.get("label"))
        elif action == "set_parameter":
            self.set_parameter(str(_field(event, "param")), _field(event, "value"))
        elif action == "run":
            self.run()
        elif action == "step":
            self.step()
        elif action == "reset":
            self.reset()
        else:
            raise InvalidInputError(f"Unknown action '{action}'. Valid: {list(ACTIONS)}")


class SimulatorStore:
    """
    每个会话一个 Simulator；Socket.IO 以 threading 模式运行，因此加锁。
    会话数超过 max_sessions 时淘汰最久未使用的会话 (LRU)
    """

    def __init__(self, factory=Simulator, max_sessions=MAX_SESSIONS):
        self._factory = factory
        self.max_sessions = max_sessions
        self._sessions = OrderedDict()
        self._lock = threading.Lock()

    def get(self, session_id):
        with self._lock:
            simulator = self._sessions.get(session_id)
            if simulator is not None:
                self._sessions.move_to_end(session_id)
                return simulator
            while self._sessions and len(self._sessions) >= self.max_sessions:
                evicted, _ = self._sessions.popitem(last=False)
                logger.info(f"淘汰会话: {evicted}")
            simulator = self._factory()
            self._sessions[session_id] = simulator
            logger.info(f"新建会话: {session_id}")
            return simulator

    def discard(self, session_id):
        with self._lock:
            if self._sessions.pop(session_id, None) is not None:
                logger.info(f"移除会话: {session_id}")

    def __contains__(self, session_id):
        with self._lock:
            return session_id in self._sessions

    def __len__(self):
        with self._lock:
            return len(self._sessions)
