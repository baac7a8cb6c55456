"""
Least-squares linear regression, taught in four stages.

    slope     m = Σ(xi - x̄)(yi - ȳ) / Σ(xi - x̄)²     (0 when all x are equal)
    intercept b = ȳ - m·x̄
    MSE         = mean(residual²)
    R²          = 1 - SSres / SStot                  (0 when all y are equal)
"""

from typing import Any, Dict, List, Tuple
import logging
import numpy as np

from algorithms.core import BaseAlgorithm, ParameterSpec, StepInfo, mean, to_numpy, to_points

logger = logging.getLogger(__name__)

TOTAL_STAGES = 4


class LinearRegression(BaseAlgorithm):
    name = "linear-regression"
    title = "Linear Regression"
    parameters = (
        # The fit is closed-form; learning_rate is only stored for the UI.
        ParameterSpec(id="learning-rate", name="Learning Rate", attr="learning_rate",
                      min=0.00001, max=0.001, step=0.00001, default=0.0001,
                      description="How fast the algorithm adjusts (for gradient descent mode)"),
        ParameterSpec(id="show-residuals", name="Show Residuals", attr="show_residuals",
                      type="checkbox", default=True,
                      description="Display lines from points to the regression line"),
    )

    def __init__(self, learning_rate: float = 0.0001, show_residuals: bool = True):
        super().__init__()
        self.learning_rate = learning_rate
        self.show_residuals = show_residuals
        self._clear_model()

    def _clear_model(self):
        self.current_step = 0
        self.slope = 0.0
        self.intercept = 0.0
        self.predictions: List[float] = []
        self.residuals: List[float] = []
        self.mse = 0.0
        self.r_squared = 0.0

    def init(self, points, **params):
        for attr, value in params.items():
            setattr(self, attr, value)
        self.points = to_points(points)
        self._clear_model()
        logger.info(f"Linear Regression initialized with {len(self.points)} points")

    # ---- math ----

    def calculate_means(self) -> Tuple[float, float]:
        return mean(p.x for p in self.points), mean(p.y for p in self.points)

    def calculate_slope(self) -> float:
        mean_x, mean_y = self.calculate_means()
        X = to_numpy(self.points)
        dx = X[:, 0] - mean_x
        dy = X[:, 1] - mean_y
        numerator = float(np.sum(dx * dy))
        denominator = float(np.sum(dx * dx))
        self.slope = numerator / denominator if denominator != 0 else 0.0
        return self.slope

    def calculate_intercept(self) -> float:
        mean_x, mean_y = self.calculate_means()
        self.intercept = mean_y - self.slope * mean_x
        return self.intercept

    def predict(self, x: float) -> float:
        return self.slope * x + self.intercept

    def calculate_predictions(self) -> List[float]:
        self.predictions = [self.predict(p.x) for p in self.points]
        return self.predictions

    def calculate_residuals(self) -> List[float]:
        self.residuals = [p.y - yhat for p, yhat in zip(self.points, self.predictions)]
        return self.residuals

    def calculate_mse(self) -> float:
        if not self.residuals:
            self.mse = 0.0
            return self.mse
        r = np.asarray(self.residuals, dtype=float)
        self.mse = float(np.mean(r ** 2))
        return self.mse

    def calculate_r_squared(self) -> float:
        _, mean_y = self.calculate_means()
        y = to_numpy(self.points)[:, 1]
        ss_total = float(np.sum((y - mean_y) ** 2))
        ss_residual = float(np.sum(np.asarray(self.residuals, dtype=float) ** 2))
        self.r_squared = 1.0 - ss_residual / ss_total if ss_total != 0 else 0.0
        return self.r_squared

    def _evaluate(self):
        self.calculate_predictions()
        self.calculate_residuals()
        self.calculate_mse()
        self.calculate_r_squared()

    # ---- contract ----

    def run(self) -> Dict[str, Any]:
        self._require_points(2)
        self.calculate_slope()
        self.calculate_intercept()
        self._evaluate()
        self.current_step = TOTAL_STAGES
        logger.info(f"Linear Regression fit: slope={self.slope:.4f}, intercept={self.intercept:.2f}, "
                    f"mse={self.mse:.2f}, r2={self.r_squared:.4f}")
        return {"slope": self.slope, "intercept": self.intercept,
                "mse": self.mse, "r_squared": self.r_squared}

    def step(self) -> StepInfo:
        if self.current_step == 0:
            mean_x, mean_y = self.calculate_means()
            info = StepInfo(1, "Calculate Means",
                            f"Finding the center of our data:\n• Mean X = {mean_x:.2f}\n• Mean Y = {mean_y:.2f}",
                            "means")
        elif self.current_step == 1:
            self.calculate_slope()
            trend = "Negative slope: line goes down" if self.slope < 0 else "Positive slope: line goes up"
            info = StepInfo(2, "Calculate Slope",
                            f"The slope determines the line's steepness:\n• Slope (m) = {self.slope:.4f}\n• {trend}",
                            "slope")
        elif self.current_step == 2:
            self.calculate_intercept()
            info = StepInfo(3, "Calculate Intercept",
                            f"Where the line crosses the Y-axis:\n• Intercept (b) = {self.intercept:.2f}",
                            "intercept")
        elif self.current_step == 3:
            self._evaluate()
            info = StepInfo(4, "Evaluate Model",
                            f"Measuring how good our line is:\n• MSE = {self.mse:.2f}\n"
                            f"• R² = {self.r_squared * 100:.1f}% of variance explained",
                            "complete")
        else:
            return StepInfo("Complete", "Complete",
                            "Algorithm finished! Adjust parameters or try new data.", "complete")

        self.current_step += 1
        logger.debug(f"Linear Regression step {self.current_step}/{TOTAL_STAGES}: {info.title}")
        return info

    def reset(self):
        self._clear_model()

    def visualize(self, surface):
        surface.clear()
        surface.draw_grid()
        surface.draw_points(self.points)

        if self.current_step >= 3:
            surface.draw_regression_line(self.slope, self.intercept)
            if self.show_residuals and self.predictions:
                for p, yhat in zip(self.points, self.predictions):
                    surface.draw_line(p.x, p.y, p.x, yhat, surface.colors["highlight"], 1, True)

        if self.current_step == 1:
            mean_x, mean_y = self.calculate_means()
            color = surface.colors["mean"]
            surface.draw_line(0, mean_y, surface.width, mean_y, color, 1, True)
            surface.draw_line(mean_x, 0, mean_x, surface.height, color, 1, True)
            surface.draw_point(mean_x, mean_y, color, 10)
            surface.draw_text("Mean Point", mean_x + 15, mean_y - 10, color)

    def get_stats(self) -> Dict[str, Any]:
        return {
            "Points": len(self.points),
            "Slope (m)": f"{self.slope:.4f}",
            "Intercept (b)": f"{self.intercept:.2f}",
            "MSE": f"{self.mse:.2f}",
            "R² Score": f"{self.r_squared * 100:.1f}%",
            "Step": f"{min(self.current_step, TOTAL_STAGES)}/{TOTAL_STAGES}",
        }

    def get_state(self) -> Dict[str, Any]:
        return {"slope": self.slope, "intercept": self.intercept,
                "predictions": list(self.predictions), "residuals": list(self.residuals),
                "mse": self.mse, "r_squared": self.r_squared, "current_step": self.current_step,
                "learning_rate": self.learning_rate, "show_residuals": self.show_residuals}
