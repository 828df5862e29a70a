from .user import User, Role, Permission, role_permissions
from .vendor import Vendor
from .question import Question
from .evaluation import Evaluation, EvaluationStatus, EvaluationQuestion
from .assignment import VendorAssignment, AssignmentStatus
from .response import Response, AnswerValue
from .recommendation import Recommendation, RecommendationStatus
