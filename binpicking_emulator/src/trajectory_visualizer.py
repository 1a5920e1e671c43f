#!/usr/bin/env python3

import threading

import rospy

from visualization_msgs.msg import Marker as MarkerMsg
from moveit_msgs.msg import MoveItErrorCodes
from moveit_msgs.srv import GetPositionFK, GetPositionFKRequest


class TrajectoryVisualizer:
   ''' Publishes a sphere marker at the tool position of every trajectory waypoint. '''

   MARKER_SCALE = 0.01
   MARKER_COLOR = (0.9, 0.9, 0.9, 1.0)
   MARKER_LIFETIME = 5


   def __init__(self, joint_names, topic='trajectory', frame_id='base_link', ee_link='tool0', delay=0.001):
      self._joint_names = list(joint_names)
      self._frame_id = frame_id
      self._ee_link = ee_link
      self.delay = delay
      self.enabled = True

      self._marker_index = 0
      self._index_lock = threading.Lock()

      self._trajectory_pub = rospy.Publisher(topic, MarkerMsg, queue_size = 1)
      self._compute_fk = rospy.ServiceProxy('/compute_fk', GetPositionFK)


   def show_trajectory(self, points):
      if not self.enabled: return
      threading.Thread(target=self._publish_trajectory, args=(list(points),), daemon=True).start()


   def _publish_trajectory(self, points):
      try:
         for point in points:
            position = self._tool_position(point.positions)
            if position is None: continue
            self._trajectory_pub.publish(self._marker(position))
            if self.delay > 0: rospy.sleep(self.delay)
      except (rospy.ServiceException, rospy.ROSException) as e:
         rospy.logwarn(f'Trajectory visualization stopped: {e}')


   def _tool_position(self, joint_positions):
      fk_request = GetPositionFKRequest()
      fk_request.header.frame_id = self._frame_id
      fk_request.fk_link_names = [self._ee_link]
      fk_request.robot_state.joint_state.name = self._joint_names
      fk_request.robot_state.joint_state.position = list(joint_positions)
      fk_res = self._compute_fk(fk_request)
      if fk_res.error_code.val != MoveItErrorCodes.SUCCESS or len(fk_res.pose_stamped) == 0: return None
      return fk_res.pose_stamped[0].pose.position


   def _marker(self, position):
      with self._index_lock:
         marker_id = self._marker_index
         self._marker_index += 1

      marker = MarkerMsg()
      marker.header.frame_id = self._frame_id
      marker.header.stamp = rospy.Time.now()
      marker.ns = 'trajectory'
      marker.id = marker_id
      marker.type = MarkerMsg.SPHERE
      marker.action = MarkerMsg.ADD
      marker.pose.position = position
      marker.pose.orientation.w = 1.0
      marker.scale.x = marker.scale.y = marker.scale.z = self.MARKER_SCALE
      marker.color.r, marker.color.g, marker.color.b, marker.color.a = self.MARKER_COLOR
      marker.lifetime = rospy.Duration(self.MARKER_LIFETIME)
      return marker
